"""Desktop UI for capturepicker."""

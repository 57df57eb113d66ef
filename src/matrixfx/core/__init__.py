"""Effect selection, dispatch, panel composition and auto-cycling."""

"""build-spine command line interface."""

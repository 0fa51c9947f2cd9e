"""depthblur command-line entry points."""

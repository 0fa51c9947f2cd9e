"""depthblur utilities."""

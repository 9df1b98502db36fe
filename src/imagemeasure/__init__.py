"""Interactive length measurement on raster images."""

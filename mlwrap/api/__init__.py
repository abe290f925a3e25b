"""HTTP API for script segmentation and wrapping."""

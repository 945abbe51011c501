"""Local stand-in for the 3D segmentation service, for development and tests."""

"""Import pipeline for scientific imaging datasets."""

"""Compile pipeline: path mapping, staleness, preprocessing, persistence."""

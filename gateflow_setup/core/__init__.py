"""Protocol core: keys, stores and the platform boundary."""

# Utilities
# Tag file I/O (mutagen) and fingerprinting (fpcalc)

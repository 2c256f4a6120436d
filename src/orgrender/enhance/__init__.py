"""Document enhancements: timestamps, footnotes, logbooks and keywords."""

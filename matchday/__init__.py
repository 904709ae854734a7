"""Football data backend with moderated community submissions."""

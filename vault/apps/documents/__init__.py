"""Student document directory: metadata, storage quota and file serving."""

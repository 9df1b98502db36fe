"""
The CONTROLLER layer owns the mutable application state and talks to the
outside world (image decoding, clipboard, settings, undo stack, autosave).
"""

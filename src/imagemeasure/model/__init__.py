"""
The MODEL layer contains pure data structures and business logic.
It has NO knowledge of windows or widgets. It deals with geometry,
calibration, edge snapping and I/O.
"""

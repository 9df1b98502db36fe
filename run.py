"""
Development Runner
==================
Starts Image Measure from a source checkout without installing it.

Usage:
    $ python run.py                      # restore the last session
    $ python run.py scans/ a.tif b.png   # open folders and images
    $ python run.py study.imeas          # open a project

IMAGEMEASURE_DEBUG=1 enables debug logging and IMAGEMEASURE_LOG_FILE moves
the rotating log file.
"""
import os
import sys

# Resolve 'imagemeasure' from the src/ layout
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src'))

if sys.platform == 'win32':
    # Own taskbar group instead of python.exe
    import ctypes
    ctypes.windll.shell32.SetCurrentProcessExplicitAppUserModelID('ImageMeasure.Desktop')

from imagemeasure.main import main

if __name__ == "__main__":
    main()

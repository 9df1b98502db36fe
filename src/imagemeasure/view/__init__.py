"""Qt widgets: main window, measurement canvas, side panel and dialogs."""

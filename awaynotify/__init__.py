"""
awaynotify package.

Application shell for the IRC away notifier: logging setup and the
command-line entry point.
"""

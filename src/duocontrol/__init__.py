"""duocontrol -- Control center for the ASUS Zephyrus Duo.

This package drives the keyboard backlight, the ScreenPad secondary
display and its touch input through a fixed set of vendor shell scripts.
The architecture is split on purpose -- a privileged Host process owns
every subprocess and file, and the Display Layer reaches it only through
a narrow Bridge of six named operations.
"""

__version__ = "0.1.0"

"""Privileged Host for duocontrol.

Owns every OS-level capability the control center needs -- spawning the
driver scripts, reading device status, native dialogs, the terminal
launcher and file access -- and serves them over a small HTTP API on
loopback. The Display Layer never talks to these components directly.
"""

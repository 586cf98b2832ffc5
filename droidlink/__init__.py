"""
droidlink - retrieve, move and archive files from Android devices.

Two access channels are orchestrated:
- adb (privileged, reaches Android/data)
- sshfs mounts against an SSH server running on the device

On top of those it provides transactional moves and Minecraft Bedrock
world backups (folder copies and .mcworld archives).
"""

__version__ = "0.1.0"
__author__ = "droidlink Contributors"

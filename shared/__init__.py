"""
Shared Kernel

Domain base classes, value objects (money, slot positions, parking
windows), the unit of work and the message bus used by every
Time2Park app.
"""

"""
                Hostel Grub Ordering System

Backend for hostel food ordering: students sign in and order from the
night-canteen menu, staff move orders through their status lifecycle
from a PIN-protected admin view.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"

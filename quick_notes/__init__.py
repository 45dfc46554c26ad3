# quick_notes/__init__.py
# Description: Quick Notes remote synchronization engine.
#
__version__ = "0.1.0"

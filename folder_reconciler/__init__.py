"""
Folder Reconciler - merge, diff, back up and check two folders for merge errors.

Features:
- Merge and backup through robocopy (Windows) or rsync, with dry run
- Plain diff of two folders by relative path
- Merge-error scan: finds destination files a mirror left stale and
  copies both versions into a quarantine folder
- Fast file comparison using xxhash
- Persistent run log
"""

__version__ = "1.0.0"

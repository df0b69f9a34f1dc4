"""Disk and path helpers for vps-cleanup."""
import os
import shutil
import time

DAY = 86400


#size formatter
def human_size(num):
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if abs(num) < 1024.0:
            return f"{num:3.1f} {unit}"
        num /= 1024.0
    return f"{num:.1f} PB"


def du_path(path):
    total = 0
    try:
        if not os.path.exists(path):
            return 0
        if os.path.isfile(path):
            return os.path.getsize(path)
        for root, dirs, files in os.walk(path, followlinks=False):
            for f in files:
                fp = os.path.join(root, f)
                try:
                    if not os.path.islink(fp):
                        total += os.path.getsize(fp)
                except OSError:
                    pass
        return total
    except OSError:
        return 0


def filesystem_usage(path):
    """(total, used, free) bytes for the filesystem holding path, or None."""
    try:
        usage = shutil.disk_usage(path)
    except OSError:
        return None
    return usage.total, usage.used, usage.free


def older_than_days(mtime, days, now=None):
    """Same test as `find -mtime +days`: the age, in whole days, exceeds days."""
    now = time.time() if now is None else now
    return int((now - mtime) // DAY) > days

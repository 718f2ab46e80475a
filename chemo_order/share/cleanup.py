"""
Expiry sweep for shared images.

Runs once when the application starts and then every
``settings.cleanup_interval_hours``. An image older than the share TTL is
deleted together with its preview page.
"""
import asyncio
import logging
import time
from pathlib import Path
from typing import List, Optional

from ..config import settings
from ..core.storage import ensure_public_dirs, shared_image_dir, shared_page_dir

logger = logging.getLogger(__name__)

def remove_expired_shared_images(now: Optional[float] = None) -> List[str]:
    """
    Delete shared images whose modification time is older than the TTL.
    
    Args:
        now: POSIX timestamp to measure age against (defaults to time.time())
        
    Returns:
        List of removed image file names
    """
    ensure_public_dirs()
    now = time.time() if now is None else now
    ttl_seconds = settings.share_ttl_days * 24 * 60 * 60

    removed = []
    for path in sorted(shared_image_dir().iterdir()):
        if not path.is_file():
            continue
        if now - path.stat().st_mtime <= ttl_seconds:
            continue
        path.unlink()
        (shared_page_dir() / f"{Path(path.name).stem}.html").unlink(missing_ok=True)
        removed.append(path.name)

    if removed:
        logger.info(f"Shared image cleanup removed {len(removed)} file(s): {removed}")
    return removed

async def run_cleanup_loop(interval_seconds: Optional[float] = None) -> None:
    """Sweep now, then every interval until cancelled. A failed sweep is logged and retried next time."""
    interval = interval_seconds or settings.cleanup_interval_hours * 60 * 60
    while True:
        try:
            await asyncio.to_thread(remove_expired_shared_images)
        except Exception as e:
            logger.error(f"Shared image cleanup failed: {str(e)}")
        await asyncio.sleep(interval)

def start_cleanup_scheduler() -> asyncio.Task:
    logger.info(f"Scheduling shared image cleanup every {settings.cleanup_interval_hours} hour(s)")
    return asyncio.create_task(run_cleanup_loop())

#!/usr/bin/env python3
"""
Cron script that marks ended mentorship sessions as completed
Run this via cron every 15 minutes: */15 * * * * /path/to/venv/bin/python /path/to/complete_sessions_cron.py
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.services.mentorship_service import MentorshipService
from app.utils.logger import get_logger
from app.database import init_db
from datetime import datetime

logger = get_logger('completion_cron')


def main():
    """Main cron job function"""
    logger.info(f"Starting session completion sweep at {datetime.now()}")

    try:
        init_db()

        completed = MentorshipService().complete_past_sessions()

        logger.info(f"Session completion sweep finished: {completed} sessions completed")

    except Exception as e:
        logger.error(f"Error in session completion sweep: {str(e)}")
        raise


if __name__ == "__main__":
    main()

#!/usr/bin/env python
import logging
import os
import sys

if __name__ == "__main__":
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'settings.dev')

    if 'test' in sys.argv[0:3]:
        # Route warnings through logging and never prompt before dropping the test database.
        logging.captureWarnings(True)
        sys.argv.append('--noinput')

    from django.core.management import execute_from_command_line
    execute_from_command_line(sys.argv)

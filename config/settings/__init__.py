"""Settings modules for Phuket Yachts.

``base`` holds everything shared; ``dev``, ``test`` and ``prod`` import
it and override per environment. Select one with DJANGO_SETTINGS_MODULE.
"""

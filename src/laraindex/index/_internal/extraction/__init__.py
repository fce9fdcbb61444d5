"""Per-domain entity extractors.

Each module exposes pure ``parse_*``/``extract_*`` functions over file
content and a ``collect_*`` function that walks the project through a
SourceReader.
"""

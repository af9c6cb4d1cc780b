"""
Utilities Package for FFMP.

Pure helper functions with no I/O of their own, shared by the services and the
orchestrator.

Modules:
    - path_template.py: Derives an output path from an input path and a pattern.
    - ffmpeg_utils.py: Builds the ffmpeg argument vector and its display form.
    - format_utils.py: Human-readable durations, sizes and the progress bar.
"""

"""
Services Package for FFMP.

This package contains the service layer: classes and functions that perform one
concrete task each and are composed by the orchestrator in `ffmp.pipeline`.

- **Process execution (`process_runner`):** launches one ffmpeg process with an
  argument vector, captures or relays its output and interprets the exit code.
- **Cancellation (`cancellation`):** the registry of live processes and the
  signal handler that kills them on interrupt.
- **Progress (`progress`, `console`):** the thread-safe completion counter and
  its console rendering.
- **File discovery (`file_processing_service`):** builds the list of inputs from
  a directory or a list file.
- **Logging (`logging_service`):** plain-text error logs and YAML run reports.
"""

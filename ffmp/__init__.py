"""
FFMP: a concurrent batch transcoder driving an external `ffmpeg` process.

The package is laid out in layers:
- `config`: static settings and the optional `config.user.yaml` overrides.
- `domain`: the value objects (configuration, jobs, outcomes) and exceptions.
- `services`: process execution, progress tracking, cancellation, file discovery
  and structured logs.
- `pipeline`: the job orchestrator tying the services together.
- `utils`: pure helpers (output path templating, ffmpeg argument building,
  formatting).
"""

__version__ = "1.0.0"

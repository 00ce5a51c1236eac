# PeakInfer - GitHub Action Package
#
# This package contains the 5-stage pipeline that runs on every pull request.
# Each stage is in its own file following the one-function-per-file
# architecture pattern.
#
# The pipeline is orchestrated by action_main.py and runs inside a GitHub
# Actions runner. It reads the GitHub event payload, calls the PeakInfer API
# (which does all of the analysis server-side), and writes back to GitHub
# (one PR comment plus step outputs).
#
# Stage flow:
#   1. Collect Source Files -> 2. Call Analysis API -> 3. Classify Verdict
#   -> 4. Render Comment -> 5. Publish Results

__version__ = "1.9.6"

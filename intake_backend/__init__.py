"""Lead intake backend: project intake, lead triage and presigned file transfer."""

# PashuAI HTTP API
# Created: 2026-10-13
#
# REST + SSE endpoints under /api for the web chat client.

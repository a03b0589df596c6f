# API package - request dispatch and dependency wiring

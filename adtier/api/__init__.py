# API routes

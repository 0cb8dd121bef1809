"""HTTP routers; app.main includes each one explicitly."""

"""Framework-agnostic building blocks shared by services (errors, ports, base)."""

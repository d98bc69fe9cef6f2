"""Push pipeline engine — resolve, build, verify, sign, copy."""

# Bump when scoring rules or report shape change: it is part of every cache key
ENGINE_VERSION = "0.1.0"

"""arplan - spatial reconstruction and measurement geometry for AR captures."""

__version__ = "0.1.0"

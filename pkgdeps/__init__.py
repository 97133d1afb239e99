"""pkgdeps — transitive dependency resolution for cluster package installs."""

__version__ = "0.1.0"

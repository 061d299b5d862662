"""yoctobox - Run Yocto/bitbake builds inside disposable Docker containers."""

__version__ = "1.0.0"

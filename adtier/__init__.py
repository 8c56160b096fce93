"""Ad performance sync and classification service"""
__version__ = "1.0.0"

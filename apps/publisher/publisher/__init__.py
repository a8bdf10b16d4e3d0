"""Publishes built binaries to Artifactory instances."""

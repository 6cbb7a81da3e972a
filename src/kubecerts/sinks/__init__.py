"""Destinations for issued credentials."""

from kubecerts.sinks.base import CredentialSink
from kubecerts.sinks.files import FileCredentialSink
from kubecerts.sinks.kubeconfig import KubeconfigCredentialSink

__all__ = ["CredentialSink", "FileCredentialSink", "KubeconfigCredentialSink"]

"""wortels: content-addressed JavaScript minification and bundling.

Manifests list the sources of each bundle. Every unique source is minified
once per content fingerprint, the output is cached on disk per minifier
backend, and bundles are assembled from that cache, optionally named after
a digest of their own content.
"""

__version__ = "0.9.0"
__description__ = "Content-addressed JavaScript minification and bundling"

from wortels.core.pipeline import BundlePipeline
from wortels.models.config import BundleConfig
from wortels.cli.app import app as cli

__all__ = ["BundlePipeline", "BundleConfig", "cli", "__version__"]

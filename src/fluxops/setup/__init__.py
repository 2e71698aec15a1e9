"""Setup workflows subpackage.

This package contains the FluxCD bootstrap and the GitHub Packages
registry secret workflows.
"""

from fluxops.setup.flux import BootstrapOptions, bootstrap_flux
from fluxops.setup.packages_secret import PackagesSecretOptions, build_dockerconfigjson, setup_packages_secret

__all__ = [
    # flux
    "BootstrapOptions",
    "bootstrap_flux",
    # packages_secret
    "PackagesSecretOptions",
    "build_dockerconfigjson",
    "setup_packages_secret",
]

"""
Natter Client Package
A client for the Natter social API that logs in with one of three session
strategies and follows capability URLs to traverse linked resources.

CLI Usage:
    python -m natter_client <command> [options]

    Commands:
        login           Log in and store the session
        request         Authenticated JSON request
        create-space    Create a social space
        resolve         Resolve one capability URL
        traverse        Resolve a list of capability URLs in order
        links           Extract capability links from an HTML file
"""

from .errors import (
    NatterClientError,
    AuthRequiredError,
    RequestError,
    NetworkError,
    LoginError,
    CapabilityResolutionError,
    ConfigError,
)
from .transport import RequestDescriptor, ResponseDescriptor
from .client import AuthenticatedClient, Navigator
from .capability import CapabilityURL, CapabilityResolver, rewrite_capability_url
from .links import extract_capability_links
from .api import NatterAPI
from .run_config import ClientRunConfig
from .auth import (
    AuthFactory,
    Credentials,
    LoginManager,
    SessionStore,
    encode_basic,
)

__all__ = [
    'NatterClientError',
    'AuthRequiredError',
    'RequestError',
    'NetworkError',
    'LoginError',
    'CapabilityResolutionError',
    'ConfigError',
    'RequestDescriptor',
    'ResponseDescriptor',
    'AuthenticatedClient',
    'Navigator',
    # Capabilities
    'CapabilityURL',
    'CapabilityResolver',
    'rewrite_capability_url',
    'extract_capability_links',
    # Domain API
    'NatterAPI',
    'ClientRunConfig',
    # Auth
    'AuthFactory',
    'Credentials',
    'LoginManager',
    'SessionStore',
    'encode_basic',
]

__version__ = '1.0.0'

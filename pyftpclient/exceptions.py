# Copyright (C) 2007 Giampaolo Rodola' <g.rodola@gmail.com>.
# Use of this source code is governed by MIT license that can be
# found in the LICENSE file.

__all__ = [
    "AddressParseError",
    "Canceled",
    "ConfigurationError",
    "ContextError",
    "DeadlineExceeded",
    "ProtocolError",
]


class ProtocolError(Exception):
    """Raised when a line received on the control connection can't be
    framed as a reply. The connection is unusable after this.
    """


class AddressParseError(ProtocolError):
    """Raised when the body of a PASV or EPSV reply doesn't contain
    a usable address.
    """


class ConfigurationError(ValueError):
    """Raised on invalid client parameters, before any protocol
    exchange takes place.
    """


class ContextError(Exception):
    """Base class for errors reported when a Context is done."""


class Canceled(ContextError):
    """The context was canceled."""

    def __init__(self, msg="context canceled"):
        super().__init__(msg)


class DeadlineExceeded(ContextError):
    """The context deadline passed.

    Not an OSError subclass: transport failures and expired deadlines
    are caught separately.
    """

    def __init__(self, msg="context deadline exceeded"):
        super().__init__(msg)

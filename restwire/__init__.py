# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

import logging

from ._errors import (
    ConversionError,
    ConversionException,
    ErrorKind,
    HttpError,
    InvalidEndpointDescriptor,
    MissingPathParameter,
    NetworkError,
    RestError,
    RestwireError,
    UnexpectedError,
    UnusedNamedParameterOnEntityRequest,
)
from .http import (
    DELETE,
    GET,
    HEAD,
    POST,
    PUT,
    Callback,
    Client,
    Converter,
    Header,
    JsonConverter,
    MethodDescriptor,
    Named,
    Parameter,
    Profiler,
    Request,
    RequestInformation,
    Response,
    RestAdapter,
    Server,
    SingleEntity,
    TypedByteArray,
    TypedBytes,
    TypedString,
    multipart,
    query_param,
    query_params,
    rest_method,
)
from .version import __version__

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

__all__ = (
    "__version__",
    "DELETE",
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "Callback",
    "Client",
    "ConversionError",
    "ConversionException",
    "Converter",
    "ErrorKind",
    "Header",
    "HttpError",
    "InvalidEndpointDescriptor",
    "JsonConverter",
    "MethodDescriptor",
    "MissingPathParameter",
    "Named",
    "NetworkError",
    "Parameter",
    "Profiler",
    "Request",
    "RequestInformation",
    "Response",
    "RestAdapter",
    "RestError",
    "RestwireError",
    "Server",
    "SingleEntity",
    "TypedByteArray",
    "TypedBytes",
    "TypedString",
    "UnexpectedError",
    "UnusedNamedParameterOnEntityRequest",
    "multipart",
    "query_param",
    "query_params",
    "rest_method",
)

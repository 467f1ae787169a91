# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from .adapter import RestAdapter, Server
from .annotations import (
    DELETE,
    GET,
    HEAD,
    POST,
    PUT,
    Callback,
    Named,
    QueryParam,
    RestMethod,
    SingleEntity,
    multipart,
    query_param,
    query_params,
    rest_method,
)
from .client.base import Client, Request, Response
from .converter import Converter, JsonConverter
from .descriptor import MethodDescriptor
from .dispatcher import CallState, Dispatcher, RestCall
from .profiler import Profiler, RequestInformation
from .request_builder import RequestBuilder
from .types import (
    Header,
    MimeType,
    Parameter,
    TypedByteArray,
    TypedBytes,
    TypedString,
)

__all__ = (
    "DELETE",
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "Callback",
    "CallState",
    "Client",
    "Converter",
    "Dispatcher",
    "Header",
    "JsonConverter",
    "MethodDescriptor",
    "MimeType",
    "Named",
    "Parameter",
    "Profiler",
    "QueryParam",
    "Request",
    "RequestBuilder",
    "RequestInformation",
    "Response",
    "RestAdapter",
    "RestCall",
    "RestMethod",
    "Server",
    "SingleEntity",
    "TypedByteArray",
    "TypedBytes",
    "TypedString",
    "multipart",
    "query_param",
    "query_params",
    "rest_method",
)

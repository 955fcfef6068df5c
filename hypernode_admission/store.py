"""
Topology stores: read-only lookup of HyperNode resources by name.

Validators receive a store explicitly, so tests can swap in the in-memory
implementation without touching process-wide state.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Iterable, Mapping, Protocol

import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from .errors import HyperNodeNotFound, MalformedObjectError, TopologyLookupError
from .models import API_GROUP, API_VERSION, PLURAL, HyperNode

logger = logging.getLogger(__name__)

KUBE_CONTEXT_ENV = "HYPERNODE_ADMISSION_KUBE_CONTEXT"
REQUEST_TIMEOUT_ENV = "HYPERNODE_ADMISSION_REQUEST_TIMEOUT"


class TopologyStore(Protocol):
    def get(self, name: str) -> HyperNode:
        """Return the named HyperNode.

        Raises:
            HyperNodeNotFound: no HyperNode exists with that name.
            TopologyLookupError: the store could not be queried.
        """
        ...


class InMemoryTopologyStore:
    """Dict-backed store.

    With ``record_lookups=True`` every looked-up name is appended to
    ``lookups``; otherwise ``lookups`` stays empty.
    """

    def __init__(self, hypernodes: Iterable[HyperNode] = (), record_lookups: bool = False):
        self._hypernodes: dict[str, HyperNode] = {}
        self.record_lookups = record_lookups
        self.lookups: list[str] = []
        for hypernode in hypernodes:
            self.add(hypernode)

    def add(self, hypernode: HyperNode) -> None:
        self._hypernodes[hypernode.name] = hypernode

    def get(self, name: str) -> HyperNode:
        if self.record_lookups:
            self.lookups.append(name)
        try:
            return self._hypernodes[name]
        except KeyError:
            raise HyperNodeNotFound(name) from None


class KubernetesTopologyStore:
    """Looks HyperNodes up through the API server's custom objects endpoint."""

    def __init__(
        self,
        api: client.CustomObjectsApi | None = None,
        request_timeout: float | None = None,
    ):
        self.api = api if api is not None else client.CustomObjectsApi()
        self.request_timeout = request_timeout

    @classmethod
    def from_kubeconfig(
        cls,
        context: str | None = None,
        request_timeout: float | None = None,
    ) -> "KubernetesTopologyStore":
        """Build a store from in-cluster config, falling back to kubeconfig.

        ``context`` and ``request_timeout`` default to the
        HYPERNODE_ADMISSION_KUBE_CONTEXT and HYPERNODE_ADMISSION_REQUEST_TIMEOUT
        environment variables.
        """
        context = context or os.environ.get(KUBE_CONTEXT_ENV) or None
        if request_timeout is None and os.environ.get(REQUEST_TIMEOUT_ENV):
            request_timeout = float(os.environ[REQUEST_TIMEOUT_ENV])

        try:
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes configuration")
        except ConfigException:
            config.load_kube_config(context=context)
            logger.info("Loaded kubeconfig (context=%s)", context or "<current>")

        return cls(client.CustomObjectsApi(), request_timeout=request_timeout)

    def get(self, name: str) -> HyperNode:
        kwargs: dict[str, Any] = {}
        if self.request_timeout is not None:
            kwargs["_request_timeout"] = self.request_timeout

        try:
            obj = self.api.get_cluster_custom_object(
                API_GROUP, API_VERSION, PLURAL, name, **kwargs
            )
        except ApiException as e:
            if e.status == 404:
                raise HyperNodeNotFound(name) from e
            logger.warning("Lookup of hypernode %s failed with status %s", name, e.status)
            raise TopologyLookupError(f"{e.status} {e.reason}") from e
        except urllib3.exceptions.HTTPError as e:
            logger.warning("Lookup of hypernode %s failed: %s", name, e)
            raise TopologyLookupError(str(e)) from e

        if not isinstance(obj, Mapping):
            raise TopologyLookupError(f"unexpected response for hypernode {name}")
        try:
            return HyperNode.from_dict(obj)
        except MalformedObjectError as e:
            raise TopologyLookupError(f"stored hypernode {name} is malformed: {e}") from e

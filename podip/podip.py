import argparse
import collections
import json
import logging
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError

logger = logging.getLogger(__name__)

EXAMPLES = ("  kubectl helper ip nginx\n" +
            "or:\n" +
            "  kubectl helper ip -n dev nginx")

COLUMNS = [("NAME", 30), ("NAMESPACE", 20), ("POD IP", 20),
           ("NODE NAME", 30), ("NODE IP", 20)]
SEPARATOR_WIDTH = 120
HEADER_COLOR = "\033[1;36m"
LINE_COLOR = "\033[36m"
RESET = "\033[0m"

PodInfo = collections.namedtuple(
    "PodInfo", ["name", "namespace", "ip", "node_name", "node_ip"])

# A namespace of None means all namespaces.
QueryParams = collections.namedtuple("QueryParams", ["pattern", "namespace"],
                                     defaults=[None])


class PodIPError(Exception):
    """Base class for errors that end a query."""


class UsageError(PodIPError):
    """Raised when the command line lacks a usable search pattern."""

    def __init__(self, message="please provide a search pattern"):
        super().__init__("%s, for example:\n%s" % (message, EXAMPLES))


class ClusterConfigError(PodIPError):
    """Raised when no cluster credentials can be loaded."""


class ListingError(PodIPError):
    """Raised when listing pods or nodes fails.  `step` names the call
    that failed, either "pods" or "nodes".
    """

    def __init__(self, step, cause):
        self.step = step
        super().__init__("failed to list %s: %s" % (step, _describe(cause)))


def _describe(exc):
    if isinstance(exc, ApiException):
        summary = "%s %s" % (exc.status, exc.reason)
        message = _api_message(exc.body)
        return "%s: %s" % (summary, message) if message else summary
    lines = str(exc).strip().splitlines()
    return lines[0] if lines else type(exc).__name__


def _api_message(body):
    """Return the "message" field of a Status body, if there is one."""
    if not body:
        return ""
    if isinstance(body, bytes):
        body = body.decode(errors="replace")
    try:
        status = json.loads(body)
    except ValueError:
        return ""
    if not isinstance(status, dict):
        return ""
    message = status.get("message")
    return message if isinstance(message, str) else ""


def load_cluster_config(kubeconfig=None, context=None):
    """Load credentials for the API client.

    An explicit kubeconfig file or context wins.  Otherwise try the
    in-cluster service account first and fall back to the default
    kubeconfig (which honors $KUBECONFIG).
    """
    try:
        if kubeconfig or context:
            logger.debug("Loading kubeconfig '%s' context '%s'" %
                         (kubeconfig or "<default>", context or "<current>"))
            config.load_kube_config(config_file=kubeconfig, context=context)
            return
        try:
            config.load_incluster_config()
            logger.debug("Using in-cluster configuration.")
        except ConfigException:
            config.load_kube_config()
            logger.debug("Using kubeconfig configuration.")
    except Exception as exc:
        logger.debug("Must be run from a system with k8s API access.")
        raise ClusterConfigError(
            "cannot load cluster configuration: %s" % _describe(exc)) from exc


def _text(obj, attr):
    """Return a string attribute of a client model object, or "" if it is
    unset.  Raise ValueError if it holds anything other than a string.
    """
    value = getattr(obj, attr, None)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError("%s is %s, not a string" %
                         (attr, type(value).__name__))
    return value


def build_node_index(nodes):
    """Map node name to the node's first InternalIP address.  Nodes with
    no InternalIP address are left out.
    """
    index = {}
    for node in nodes:
        if node.metadata is None or node.status is None:
            continue
        name = node.metadata.name
        for addr in node.status.addresses or []:
            if addr.type == "InternalIP" and isinstance(addr.address, str):
                index[name] = addr.address
                break
    logger.debug("Node index: %s" % str(index))
    return index


def pod_to_info(pod, node_index):
    """Convert a V1Pod to a PodInfo, or return None if the pod does not
    have the expected shape.
    """
    metadata = getattr(pod, "metadata", None)
    spec = getattr(pod, "spec", None)
    status = getattr(pod, "status", None)
    if metadata is None or spec is None or status is None:
        logger.debug("Skipping pod without metadata, spec or status")
        return None
    try:
        name = _text(metadata, "name")
        namespace = _text(metadata, "namespace")
        ip = _text(status, "pod_ip")
        node_name = _text(spec, "node_name")
    except ValueError as exc:
        logger.debug("Skipping pod '%s': %s" %
                     (getattr(metadata, "name", None), exc))
        return None
    if not name:
        logger.debug("Skipping pod without a name")
        return None
    return PodInfo(name=name,
                   namespace=namespace,
                   ip=ip,
                   node_name=node_name,
                   node_ip=node_index.get(node_name, ""))


def find_matching_pods(v1, params):
    """Return a PodInfo for every pod whose name contains params.pattern,
    ignoring case, in the order the API lists them.
    """
    if not params.pattern:
        raise UsageError()
    try:
        if params.namespace:
            logger.debug("Listing pods in namespace '%s'" % params.namespace)
            pods = v1.list_namespaced_pod(params.namespace).items
        else:
            logger.debug("Listing pods in all namespaces")
            pods = v1.list_pod_for_all_namespaces().items
    except (ApiException, HTTPError) as exc:
        raise ListingError("pods", exc) from exc
    try:
        nodes = v1.list_node().items
    except (ApiException, HTTPError) as exc:
        raise ListingError("nodes", exc) from exc
    logger.debug("Got %d pods and %d nodes" % (len(pods), len(nodes)))
    node_index = build_node_index(nodes)
    needle = params.pattern.lower()
    matches = []
    for pod in pods:
        info = pod_to_info(pod, node_index)
        if info is None:
            continue
        if needle in info.name.lower():
            matches.append(info)
    logger.debug("%d pods match '%s'" % (len(matches), params.pattern))
    return matches


def _row(fields):
    return " ".join(str(f).ljust(w) for f, (_, w) in zip(fields, COLUMNS))


def render(pods, pattern, color=False):
    """Format matching pods as a fixed-width table.
    """
    if not pods:
        return "No pods found matching the pattern: %s" % pattern
    header = _row([label for label, _ in COLUMNS])
    line = "-" * SEPARATOR_WIDTH
    if color:
        header = HEADER_COLOR + header + RESET
        line = LINE_COLOR + line + RESET
    lines = ["", header, line]
    for p in pods:
        lines.append(_row([p.name, p.namespace, p.ip, p.node_name,
                           p.node_ip]))
    lines.append("")
    return "\n".join(lines)


class PodIP(object):
    """Class for finding Pods by name and reporting where they run.
    """
    logger = None
    client = None
    args = argparse.Namespace(debug=False,
                              pattern=None,
                              namespace=None,
                              kubeconfig=None,
                              context=None,
                              no_color=False
                              )

    def __init__(self, args=None, api=None):
        logging.basicConfig()
        self.logger = logger
        if args:
            self.args = args
        if self.args and self.args.debug:
            self.logger.setLevel(logging.DEBUG)
            self.logger.debug("Debug logging on.")
        else:
            self.logger.setLevel(logging.INFO)
        self.logger.debug("Arguments: %s" % str(self.args))
        if api is None:
            load_cluster_config(kubeconfig=self.args.kubeconfig,
                                context=self.args.context)
            api = client.CoreV1Api()
        self.client = api

    def query_params(self):
        return QueryParams(pattern=self.args.pattern,
                           namespace=self.args.namespace)

    def find(self):
        """Query the cluster for pods matching the search pattern.
        """
        return find_matching_pods(self.client, self.query_params())

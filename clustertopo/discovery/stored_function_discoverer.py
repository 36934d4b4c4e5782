"""Discovers cluster instances by calling a stored function on the server."""

from clustertopo.address.address_set import AddressSet
from clustertopo.discovery.cluster_discoverer import ClusterDiscoverer
from clustertopo.discovery.discovery_result_validator import extract_addresses
from clustertopo.rpc.stored_function_caller import StoredFunctionCaller


class StoredFunctionDiscoverer(ClusterDiscoverer):
    """Asks the cluster for its members through a stored function.

    The function takes no arguments and returns, as its first value, an array
    of ``host[:port]`` strings. Transport failures from `caller` propagate
    unchanged; only a delivered reply of the wrong shape raises
    `DiscoveryContractViolation`.
    """

    def __init__(self, caller: StoredFunctionCaller, function_name: str) -> None:
        """
        Args:
            caller: Transport used to invoke the function.
            function_name: Name of the discovery function.

        Raises:
            ValueError: If `caller` is None or `function_name` is empty.
            TypeError: If `function_name` is not a string.
        """
        if caller is None:
            raise ValueError("caller cannot be None.")
        if not isinstance(function_name, str):
            raise TypeError(
                "function_name must be str, got "
                f"{type(function_name).__name__}."
            )
        if not function_name.strip():
            raise ValueError("function_name cannot be empty.")

        self.__caller = caller
        self.__function_name = function_name

    @property
    def function_name(self) -> str:
        return self.__function_name

    def get_instances(self) -> AddressSet:
        reply = self.__caller.call(self.__function_name)
        return extract_addresses(reply)

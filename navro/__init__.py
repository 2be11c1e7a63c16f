import importlib

mod = "navro"
class LazyLoader:
    """
    Lazy loader for the navro functions to speed up startup time.
    """
    def __init__(self, mappings):
        self._modules = {}
        self._mappings = mappings

    def _load_module(self, module_name):
        if module_name not in self._modules:
            self._modules[module_name] = importlib.import_module(module_name)
        return self._modules[module_name]

    def __getattr__(self, item):
        if item in self._mappings:
            module_name, attr_name = self._mappings[item]
            module = self._load_module(module_name)
            return getattr(module, attr_name)
        if item.startswith('__'):
            raise AttributeError(item)
        return self._load_module(f"{mod}.{item}")

# Define the public names and their corresponding module paths
_mappings = {
    "generate": (f"{mod}.pytypetoavro", "generate"),
    "generate_schema": (f"{mod}.pytypetoavro", "generate_schema"),
    "type_of": (f"{mod}.pytypetoavro", "type_of"),
    "PythonTypeToAvro": (f"{mod}.pytypetoavro", "PythonTypeToAvro"),
    "convert_python_type_to_avro": (f"{mod}.pytypetoavro", "convert_python_type_to_avro"),
    "NotSupported": (f"{mod}.kinds", "NotSupported"),
    "Kind": (f"{mod}.kinds", "Kind"),
    "int8": (f"{mod}.kinds", "int8"),
    "int16": (f"{mod}.kinds", "int16"),
    "int32": (f"{mod}.kinds", "int32"),
    "int64": (f"{mod}.kinds", "int64"),
    "uint8": (f"{mod}.kinds", "uint8"),
    "uint16": (f"{mod}.kinds", "uint16"),
    "uint32": (f"{mod}.kinds", "uint32"),
    "uint64": (f"{mod}.kinds", "uint64"),
    "float32": (f"{mod}.kinds", "float32"),
    "float64": (f"{mod}.kinds", "float64"),
    "pcf_schema": (f"{mod}.avrotools", "pcf_schema"),
    "transform_to_pcf": (f"{mod}.avrotools", "transform_to_pcf"),
}

_lazy_loader = LazyLoader(_mappings)

def __getattr__(name):
    return getattr(_lazy_loader, name)

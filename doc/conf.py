from importlib import metadata
from urllib.request import urlopen


_conf_url = "https://tiker.net/sphinxconfig-v0.py"
with urlopen(_conf_url) as _inf:
    exec(compile(_inf.read(), _conf_url, "exec"), globals())

copyright = "2024, Loom Developers"
release = metadata.version("loom")
version = ".".join(release.split(".")[:2])

exclude_patterns = ["_build"]

intersphinx_mapping = {
    "islpy": ("https://documen.tician.de/islpy", None),
    "jsonschema": ("https://python-jsonschema.readthedocs.io/en/stable/", None),
    "networkx": ("https://networkx.org/documentation/stable/", None),
    "numpy": ("https://numpy.org/doc/stable/", None),
    "python": ("https://docs.python.org/3", None),
    "pytools": ("https://documen.tician.de/pytools", None),
}

nitpicky = True

sphinxconfig_missing_reference_aliases = {
    # isl
    "isl.BasicSet": "class:islpy.BasicSet",
    "isl.Set": "class:islpy.Set",
    "isl.Space": "class:islpy.Space",
    # networkx
    "nx.DiGraph": "class:networkx.DiGraph",
    "nx.Graph": "class:networkx.Graph",
    # loom
    "SelectionMap": "obj:loom.nodes.SelectionMap",
}


def setup(app):
    app.connect("missing-reference", process_autodoc_missing_reference)  # noqa: F821

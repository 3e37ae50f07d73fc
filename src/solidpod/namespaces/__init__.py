"""Namespaces used when talking to a pod, for use with `rdflib` code."""

from rdflib import Namespace

ldp = Namespace('http://www.w3.org/ns/ldp#')
"""[Linked Data Platform](https://www.w3.org/TR/ldp/)"""


def type_link(rdf_type: str) -> str:
    """Format an HTTP `Link` header value declaring the interaction model
    of a resource being created.

    ```pycon
    >>> type_link(ldp.Container)
    '<http://www.w3.org/ns/ldp#Container>; rel="type"'
    ```
    """
    return f'<{rdf_type}>; rel="type"'

from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field  # type: ignore


class HTTPRequest(BaseModel):
    """HTTP request
    Args:
        url: The URL template of the request, formatted with path_params
        method: The HTTP method to use
        headers: The headers to send with the request
        body: The JSON body of the request
        path_params: The path parameters to use
        query_params: The query parameters to use
        form: Multipart form fields as ordered (name, value) pairs, sent without filenames.
            Names may repeat; every pair becomes its own part.
    """
    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(alias="uri")
    method: str = Field(default="GET")
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Union[Dict[str, Any], bytes, None] = None
    path_params: Dict[str, str] = Field(default_factory=dict, alias="path")
    query_params: Dict[str, str] = Field(default_factory=dict, alias="query")
    form: Optional[List[Tuple[str, str]]] = None

    def formatted_url(self) -> str:
        """Return the URL with path parameters substituted."""
        return self.url.format(**self.path_params)

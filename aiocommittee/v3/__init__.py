from .general import ExternalDocumentation, Reference
from .schemas import Schema, Discriminator
from .media import MediaType
from .parameter import Parameter, Header
from .paths import RequestBody, Response, Operation, PathItem
from .components import Components
from .info import Info
from .servers import Server, ServerVariable
from .root import Root

# Copyright 2017-present Kensho Technologies, LLC.
from .document_composer import (  # noqa
    CompiledDocument,
    compile_read_document,
    compile_write_document,
    compose_document,
    compose_mutation_document,
)
from .operation_builder import (  # noqa
    NamedFragment,
    OperationBuildResult,
    build_read_operation,
    build_write_operations,
)
from .request_params import (  # noqa
    DeleteParams,
    InsertParams,
    ReadParams,
    UpdateParams,
    WriteParams,
    parse_read_params,
    parse_write_params,
)
from .response_remapping import (  # noqa
    FlatPathMapping,
    flatten_single_result,
    remap_response,
    resolve_path,
)

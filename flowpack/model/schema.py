#flowpack/model/schema.py
# Shape gate for documents entering unpack. Invariants such as uniqueness
# and dangling references are left to structural.checker.

WORKFLOW_DOCUMENT_SCHEMA = {
    "type": "object",
    "required": ["nodes"],
    "properties": {
        "id": {"type": ["string", "number", "null"]},
        "name": {"type": ["string", "null"]},
        "active": {"type": ["boolean", "null"]},
        "tags": {"type": ["array", "null"]},
        "nodes": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "type"],
                "properties": {
                    "id": {"type": ["string", "number"]},
                    "name": {"type": "string"},
                    "type": {"type": "string"},
                    "typeVersion": {"type": ["integer", "number"]},
                    "parameters": {"type": "object"},
                    # n8n export layout: [x, y]
                    "position": {
                        "type": "array",
                        "items": {"type": "number"},
                        "minItems": 2,
                        "maxItems": 2,
                    },
                    "credentials": {"type": "object"},
                },
                "additionalProperties": True,
            },
        },
        "connections": {
            "type": ["object", "null"],
            # source node name -> output type -> [output index] -> [targets]
            "additionalProperties": {
                "type": "object",
                "additionalProperties": {
                    "type": "array",
                    "items": {
                        "type": ["array", "null"],
                        "items": {
                            "type": "object",
                            "required": ["node"],
                            "properties": {
                                "node": {"type": "string"},
                                "type": {"type": "string"},
                                "index": {"type": "integer", "minimum": 0},
                            },
                            "additionalProperties": True,
                        },
                    },
                },
            },
        },
        "settings": {"type": ["object", "null"]},
        "pinData": {"type": ["object", "null"]},
        "staticData": {"type": ["object", "null"]},
    },
    "additionalProperties": True,
}

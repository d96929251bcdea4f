import json
import sys
from pprint import pprint

from po_config import settings
from po_robot.core.catalog_loader import load_product_catalog
from po_robot.core.profiles import get_profile
from po_robot.orchestrator import Orchestrator

# Resposta salva do Document AI (JSON camelCase) + tipo do processador
DOCUMENT_PATH = sys.argv[1] if len(sys.argv) > 1 else "samples/document.json"
PROCESSOR_TYPE = sys.argv[2] if len(sys.argv) > 2 else settings.DEFAULT_PROCESSOR_TYPE

with open(DOCUMENT_PATH, "r", encoding="utf-8") as f:
    document = json.load(f)

catalog = load_product_catalog(settings.PRODUCTS_FILE)
orchestrator = Orchestrator(get_profile(PROCESSOR_TYPE), catalog)

# 1. Pipeline completo
result = orchestrator.process(document, {"trace_id": "debug", "execution_id": "debug", "tenant_id": "local"})

print("\n================ EVENTS ================\n")
for event in result.events:
    print(event.stage, event.status, event.details)

if result.status != "success":
    print("\n================ ERROR ================\n")
    pprint(result.error.model_dump())
    sys.exit(1)

# 2. Cabeçalho
print("\n================ HEADER ================\n")
for field in result.payload.header_fields:
    print(f"{field.label:>24}: {field.value}")

# 3. Itens reconciliados
print("\n================ ITEMS ================\n")
keys = list(orchestrator.profile.column_keys)
for row in result.payload.items:
    flag = " [NO MATCH]" if row.has_discrepancy else ""
    print(row.corrected_values(keys), flag)

# 4. CSV
print("\n================ CSV ================\n")
print(orchestrator.export_csv(result.payload.entities).text)

# ABOUTME: Names of the vendor extensions the LOD merge reads or rewrites
# ABOUTME: Keys used inside their payloads and in node extras

EXTENSION_MSFT_LOD = 'MSFT_lod'
MSFT_LOD_IDS_KEY = 'ids'

# Stored in a scene root node's extras, not under extensions
MSFT_SCREEN_COVERAGE_KEY = 'MSFT_screencoverage'

EXTENSION_MSFT_TEXTURE_DDS = 'MSFT_texture_dds'
EXTENSION_MSFT_PACKING_ORM = 'MSFT_packing_occlusionRoughnessMetallic'
EXTENSION_MSFT_PACKING_NRM = 'MSFT_packing_normalRoughnessMetallic'
EXTENSION_KHR_SPECULAR_GLOSSINESS = 'KHR_materials_pbrSpecularGlossiness'

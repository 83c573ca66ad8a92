# Ghana ID Document Extraction & Verification Models
# This package contains:
#   - id_text_normalizer: OCR transcript → lines / flattened text
#   - id_field_extraction_model: ordered field matchers + extract_id_info
#   - ghana_geography: known ID issuing cities
#   - id_validation: format and date checks on extracted fields
#   - image_verification_model: Face++ selfie vs. ID photo comparison

from django.dispatch import Signal

# Sent after a remote product and its images/variants were reconciled.
# Arguments: product, record
product_imported = Signal()

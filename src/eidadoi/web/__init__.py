"""HTTP interface for the DOI webservice."""

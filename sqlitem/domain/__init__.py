# Domain package: record declarations, metadata, queries, errors

"""
Prompt templates used by the LLM-assisted retrievers and the RAG chain.
"""

# Sentinel the compression prompt asks the model to return when a document
# has nothing to say about the query.
NO_RELEVANT_INFO = "NO_RELEVANT_INFO"


MULTI_QUERY_PROMPT = """Generate {num_queries} different ways to ask the following question:
{query}

Provide each question on a separate line without any numbering or bullet points."""


COMPRESSION_PROMPT = """Given the following document and query, extract only the information that is relevant to answering the query. If no relevant information is found, return '""" + NO_RELEVANT_INFO + """'.

Document:
{document}

Query:
{query}

Relevant information:"""


RAG_QUERY_PROMPT = """Use the following context to answer the question at the end. If you don't know the answer, just say that you don't know, don't try to make up an answer.

Context:
{context}
Question: {question}
Answer:"""

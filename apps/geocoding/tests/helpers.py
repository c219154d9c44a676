class FakeGeocoder:
    def __init__(self, results=None, error=None):
        self.results = results or []
        self.error = error
        self.queries = []

    def search(self, query, limit=10):
        self.queries.append((query, limit))
        if self.error:
            raise self.error
        return self.results

import simpy


class MessageBroker:
    """
    Mediates communication between components within the simulation.
    Implements a topic-based publish-subscribe model.

    Every message is copied to the broadcast pipe (consumed by the
    statistics recorder). Topic pipes are created on first subscription;
    messages published to a topic nobody subscribed to only reach the
    broadcast pipe.
    """
    def __init__(self, env: simpy.Environment, verbose: bool = False):
        """
        Initialize the message broker

        Args:
            env (simpy.Environment): SimPy environment
            verbose (bool): Echo every published message to the console
        """
        self.env = env
        self.verbose = verbose
        self.topics = {}  # Dictionary to hold Store for each subscribed topic
        self.broadcast_pipe = simpy.Store(self.env)

    def get_pipe(self, topic: str) -> simpy.Store:
        """
        Get or create a communication pipe (Store) for the specified topic
        """
        if topic not in self.topics:
            self.topics[topic] = simpy.Store(self.env)
        return self.topics[topic]

    def put(self, topic: str, message):
        """
        Publish (put) a message to the specified topic
        """
        if self.verbose:
            print(f"{self.env.now:.2f} [Broker] Publish on '{topic}': {message}")
        event = self.broadcast_pipe.put({'topic': topic, 'message': message})
        if topic in self.topics:
            return self.topics[topic].put(message)
        return event

    def get(self, topic: str):
        """
        Wait to receive (get) a message from the specified topic
        """
        pipe = self.get_pipe(topic)
        return pipe.get()

    def get_broadcast_pipe(self) -> simpy.Store:
        """
        Returns the global broadcast pipe (read by Statistics)
        """
        return self.broadcast_pipe

    def get_current_time(self) -> float:
        """
        Get current simulation time

        Lets components that hold no environment reference (the
        dispatcher, the clock's collaborators) timestamp their log lines.
        """
        return self.env.now

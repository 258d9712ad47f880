from matstack import Mat4, MatStack
import numpy as np
import timeit


c, s_ = np.cos(0.5), np.sin(0.5)
A = Mat4([[c, -s_, 0, 1], [s_, c, 0, 2], [0, 0, 1, 3], [0, 0, 0, 1]])
B = Mat4(np.diag([2.0, 2.0, 2.0, 1.0]))

s = MatStack()
s.push(A)  # warmup
A.inverse()


def push_pop():
    s.push(B)
    s.pop()


print("push/pop")
print(timeit.timeit(push_pop, number=1_000_000))

print("peek")
print(timeit.timeit(s.peek, number=1_000_000))

print("copy (depth 2)")
print(timeit.timeit(s.copy, number=1_000_000))

deep = MatStack()
for _ in range(64):
    deep.push(A)

print("rebase at 1 (depth 65)")
print(timeit.timeit(lambda: deep.rebase(1, B), number=10_000))

print("inverse")
print(timeit.timeit(A.inverse, number=1_000_000))
